# photoframe

A fullscreen digital photo frame. It scans a photo library folder recursively,
shuffles what it finds, watches the folder for new, removed and renamed
pictures, and shows them one after another with a smoothstep cross-fade. Each
photo is centred on a mat: either a solid colour or a blurred, cover-scaled
copy of the photo itself.

Supported image types: JPEG, PNG and WebP (by file extension, case
insensitive). EXIF orientation is honoured. Files that cannot be decoded are
deleted from the library and dropped from the playlist. Newly added photos go
to the front of the playlist so they appear soon.

## Installation

```
pip install .
```

The window is drawn with pygame; a display is required to run the frame.

## Running

```
photoframe config.yaml
```

`photoframe --version` prints the version. The frame runs until its window is
closed, Ctrl-C is pressed, or standard input is closed (Ctrl-D). If the
configuration cannot be read or fails validation, an error is printed and the
command exits with status 1.

While no photo is ready yet, a small white rectangle is shown in the middle of
the screen.

## Configuration

The configuration is a YAML file. Keys use kebab-case; `photo_library_path`
is also accepted. Every key has a default.

```yaml
photo-library-path: /home/me/Pictures/frame
oversample: 1.0                 # canvas size relative to the screen
fade-ms: 400                    # cross-fade duration
dwell-ms: 2000                  # time each photo stays fully visible
viewer-preload-count: 3         # photos prepared ahead of display
loader-max-concurrent-decodes: 4
startup-shuffle-seed: 7         # optional, makes the startup order repeatable
matting:
  minimum-mat-percentage: 5.0   # border on each side, percent of the canvas (at most 45)
  max-upscale-factor: 1.0       # never enlarge photos beyond this factor (at least 1)
  type: fixed-color
  color: [0, 0, 0]
```

A blurred mat:

```yaml
matting:
  type: blur
  sigma: 20.0
  max-sample-dim: 2048          # optional; blur is computed at most at this size
  backend: cpu                  # cpu (Pillow GaussianBlur) or neon (separable edge-clamped blur)
```

`viewer-preload-count`, `loader-max-concurrent-decodes`, `oversample`,
`fade-ms` and `dwell-ms` must all be greater than zero.

## Logging

Log verbosity follows the `PHOTOFRAME_LOG` environment variable, a standard
logging level name such as `debug` or `warning` (default `info`).

## Using it as a library

```python
from photoframe.config import load_configuration

cfg = load_configuration("config.yaml").validated()
```

- `photoframe.config`: `Configuration`, `MattingOptions`, `FixedColorMatting`,
  `BlurMatting`, `BlurBackend`, `parse_configuration`, `load_configuration`;
  malformed or out-of-range values raise `ConfigError`.
- `photoframe.files`: `is_image`, `scan_library` (recursive, seeded shuffle),
  `delete_if_exists`, and the async `run` task that reports `PhotoAdded` /
  `PhotoRemoved` events.
- `photoframe.manager`: `Playlist` and the async `run` task that feeds the
  loader.
- `photoframe.loader`: `read_orientation`, `apply_orientation`,
  `decode_rgba_apply_exif`, and the async `run` decoding task.
- `photoframe.blur`: `gaussian_kernel`, `separable_blur`, `apply_blur`.
- `photoframe.geometry`: canvas sizing, fit and cover sizing, centring and
  fade easing helpers.
- `photoframe.matting`: `process_mat_task` and the threaded
  `MattingPipeline`.
- `photoframe.viewer`: `SlideshowState` (display and transition timing),
  `clear_color`, and `run_windowed`.
- `photoframe.cli`: `parse_args`, `run_pipeline`, `main`.

The messages passed between tasks are defined in `photoframe.events`.
# bagextract

Small command-line tools for pulling data out of ROS bag files (format 2.0)
without a ROS installation. Each text tool reads one topic and writes its
messages as tab-separated lines on standard output; the image tool writes PNG
files; one more tool copies a bag while dropping a child frame from the
transform tree.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Text extractors

Every extractor takes the bag file and the topic name as positional arguments:

```
extract_imu recording.bag /imu > imu.tsv
```

Each argument may also be given by name, as `--bag recording.bag` or
`--topic=/imu`; `--` ends option parsing.

The first line is a header naming the columns; each following line is one
message, in order of recording time. The first column, `nsec`, is the time
stamp written as the seconds padded to nine digits followed by the nanoseconds
padded to nine digits, so `1600000000` s and `5` ns become
`1600000000000000005`. Unless stated otherwise the stamp comes from the message
header. Floating-point values are written with six significant digits.

| Command | Message type | Columns after `nsec` |
| --- | --- | --- |
| `extract_imu` | `sensor_msgs/Imu` | `quat_x..quat_w`, `accel_x..accel_z`, `angular_x..angular_z` |
| `extract_gps` | `sensor_msgs/NavSatFix` | `lat`, `lon`, `alt`, `covariance` (3×3) |
| `extract_compass` | `sensor_msgs/MagneticField` | `mag_x`, `mag_y`, `mag_z`, `covariance` (3×3) |
| `extract_float64` | `std_msgs/Float64` | `data` (stamp is the recording time) |
| `extract_uint32` | `std_msgs/UInt32` | `data` (stamp is the recording time) |
| `extract_geopointstamped` | `geographic_msgs/GeoPointStamped` | `lat`, `lon`, `alt` |
| `extract_posestamped` | `geometry_msgs/PoseStamped` | `pos_x..pos_z`, `quat_x..quat_w` |
| `extract_posewithcovariancestamped` | `geometry_msgs/PoseWithCovarianceStamped` | pose columns, `pose_cov` (6×6) |
| `extract_twiststamped` | `geometry_msgs/TwistStamped` | `lin_x..lin_z`, `ang_x..ang_z` |
| `extract_odometry` | `nav_msgs/Odometry` | pose columns, `pose_cov`, twist columns, `twist_cov` |
| `extract_pc2` | `sensor_msgs/PointCloud2` | one line per point (see below) |

Covariance matrices are written in one column as comma-separated values in
row-major order.

`extract_gps` accepts `--nostamp` to use the time the message was recorded
into the bag instead of the stamp in its header, and writes its values with
nine significant digits:

```
extract_gps --nostamp recording.bag /fix > fix.tsv
```

`extract_pc2` writes two time columns, the recording time (`recieve`) and the
header stamp (`timestamp`), followed by the point fields `x`, `y`, `xq`, `yq`,
`zq`, `wq` and `dist`. The fields may be of any of the numeric point-field
types; a cloud lacking one of them is reported as an error.

If the topic's first message is of another type than the command expects, the
command reports an error and exits with status 1. Later messages of another
type, or that cannot be decoded, are skipped.

`--help`, or a missing argument, prints a usage summary instead (exit status 0,
except `extract_pc2`, which exits with 1). An unknown option or a surplus
argument prints the problem and the usage summary and exits with status 1.

## Images

```
extract_images recording.bag /camera/image_raw frames/
```

Messages of type `sensor_msgs/Image` or `sensor_msgs/CompressedImage` are
written to the existing directory given as PNG files named after their header
stamp, for example `frames/1600000000000000005.png`. Raw images may have the
encodings `mono8`, `8UC1`, `mono16`, `16UC1`, `rgb8`, `bgr8`, `8UC3`, `rgba8`,
`bgra8` and `8UC4`; compressed images are decoded with Pillow.

Progress is shown while the images are written, followed by a count of
extracted and corrupted messages. A message that cannot be decoded is counted
as corrupted and skipped. The command exits with status 1 when the topic is not
in the bag, with status 3 when the topic holds some other message type, and
with status 1 when an image has an unsupported encoding or cannot be decoded.

## Removing a frame from the transform tree

```
exclude_child_frame input.bag output.bag base_link_old
```

Copies every message of `input.bag` into `output.bag`. On `/tf` and
`/tf_static`, transforms whose child frame is the given frame are removed, and
a message left with no transforms is not written at all. Messages on those two
topics must be `tf2_msgs/TFMessage`; anything else there, or a message that
cannot be decoded, stops the copy with an error. This command exits with
status 1 after printing its usage summary.

## Use from Python

The same pieces are available as a library:

```python
from bagextract.cli import topic_records
from bagextract.sensors import imu_lines

for line in imu_lines(topic_records("recording.bag", "/imu", "sensor_msgs/Imu")):
    print(line)
```

- `bagextract.bag`: `BagReader(path)` with `messages(topics)` and
  `count(topics)` yielding `Record` objects (topic, time, connection, data);
  `BagWriter(path)` with `write(topic, time, connection, data)`. Both are
  context managers and raise `BagError` on malformed files.
- `bagextract.messages`: dataclasses for the supported message types,
  `decode(datatype, data)` and `encode(message)`, and
  `PointCloud2.field_values(name)`.
- `bagextract.sensors` and `bagextract.poses`: the `*_lines` functions used by
  the commands.
- `bagextract.images`: `extract_images(bag_path, topic, directory, out)`,
  `image_to_pil(message)` and `image_filename(stamp)`.
- `bagextract.frames`: `exclude_child_frame(inbag, outbag, frame)`.
- `bagextract.textfmt` and `bagextract.wire`: formatting and serialisation
  helpers.

## Limitations

- Only version 2.0 bag files are handled. A bag is read whole into memory and
  scanned record by record; its index is not used for lookup.
- Chunks compressed with `bz2` or `lz4` can be read, but `BagWriter` always
  writes a single uncompressed chunk.
- Only the message types listed above can be decoded; there is no generic
  decoder driven by a message definition.
- The tools work on recorded files only; they do not connect to a running
  ROS system.
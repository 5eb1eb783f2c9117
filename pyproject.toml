[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bagextract"
version = "0.1.0"
description = "Command-line tools that turn ROS bag recordings into tab-separated text, PNG images and filtered bags"
requires-python = ">=3.10"
dependencies = [
    "lz4",
    "pillow",
    "numpy",
]
keywords = [
    "ros",
    "rosbag",
    "bag",
    "robotics",
    "imu",
    "gps",
    "odometry",
    "point cloud",
    "tf",
    "data extraction",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
extract_imu = "bagextract.sensors:main_imu"
extract_gps = "bagextract.sensors:main_gps"
extract_compass = "bagextract.sensors:main_compass"
extract_float64 = "bagextract.sensors:main_float64"
extract_uint32 = "bagextract.sensors:main_uint32"
extract_geopointstamped = "bagextract.sensors:main_geopointstamped"
extract_odometry = "bagextract.poses:main_odometry"
extract_posestamped = "bagextract.poses:main_posestamped"
extract_posewithcovariancestamped = "bagextract.poses:main_posewithcovariancestamped"
extract_twiststamped = "bagextract.poses:main_twiststamped"
extract_pc2 = "bagextract.poses:main_pc2"
extract_images = "bagextract.images:main"
exclude_child_frame = "bagextract.frames:main"

[tool.hatch.build.targets.wheel]
packages = ["bagextract"]

[tool.hatch.build.targets.sdist]
include = [
    "bagextract",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"

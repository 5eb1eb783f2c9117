"""Read and write ROS bag files and extract sensor data, images and transforms from them."""

__version__ = "0.1.0"
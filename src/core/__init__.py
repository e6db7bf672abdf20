"""Line reading engine."""

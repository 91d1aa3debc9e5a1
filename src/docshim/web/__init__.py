"""Preview server and client search widget assets."""

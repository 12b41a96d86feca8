"""FastAPI surface and settings for the defense simulation."""

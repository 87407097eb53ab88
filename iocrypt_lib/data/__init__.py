"""String codec, compression and graph normalization."""

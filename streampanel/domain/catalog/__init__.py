"""Source catalog: files and capture devices the backend can stream."""

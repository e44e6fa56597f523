"""Per-call encoding, decoding and error normalization."""

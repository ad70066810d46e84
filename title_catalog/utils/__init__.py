"""Small shared helpers (async bridging, Ok/Err results)."""

"""Schema store, type resolver, binding generator and code emitter."""

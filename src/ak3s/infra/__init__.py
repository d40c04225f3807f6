"""Infrastructure layer: external command clients and polling primitives."""

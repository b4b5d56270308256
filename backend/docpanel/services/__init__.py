"""Services Layer — context resolution, tool registry, stream control and multiplexing."""

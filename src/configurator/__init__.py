"""Runtime engine for scroll-driven 3D product configurators."""

"""
The CONTROLLER layer holds the runtime logic with timing and events:
camera orchestration and viewport-driven chapter focus.
"""

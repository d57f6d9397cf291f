"""ASCII output for the crs-planner CLI."""

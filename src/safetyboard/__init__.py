"""safetyboard — state layer for a wall-mounted safety status board."""

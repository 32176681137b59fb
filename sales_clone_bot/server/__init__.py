"""HTTP receiver and background-job launcher."""

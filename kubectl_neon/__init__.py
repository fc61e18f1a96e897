"""kubectl-neon - kubectl plugin front end for NEONKUBE clusters."""

__version__ = "0.1.0"

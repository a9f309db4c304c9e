"""Resume Refiner: AI-assisted resume tailoring and refinement."""

__version__ = "0.1.0"

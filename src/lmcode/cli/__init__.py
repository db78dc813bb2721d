"""lmcode command-line interface."""

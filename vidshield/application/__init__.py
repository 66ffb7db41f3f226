"""Application layer: asset workflows and the processing pipeline."""

"""HTTP API for LabQC."""

"""Form-submission webhook receiver with chat and SMS fan-out."""

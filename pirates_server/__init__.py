"""Local practice server for the Sea of Pirates client."""

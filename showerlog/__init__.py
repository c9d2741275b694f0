"""ShowerLog backend: capture thoughts, break them into tasks."""

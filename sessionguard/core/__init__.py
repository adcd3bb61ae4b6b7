"""Framework plumbing: config, logging, errors, extensions and middleware."""

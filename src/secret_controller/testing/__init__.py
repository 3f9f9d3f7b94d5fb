"""Testing – in-memory doubles for the controller ports."""

"""UI-facing state: loading state machine and presentation view model."""

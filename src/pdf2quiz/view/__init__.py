"""Terminal front ends for a quiz session."""

"""Command interpretation, message gating and relay control."""

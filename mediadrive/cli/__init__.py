"""Interactive and command-line front ends for storage group management."""

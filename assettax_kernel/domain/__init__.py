"""Pure domain helpers shared by the kernel and services."""

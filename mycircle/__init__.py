"""MyCircle hyperlocal marketplace backend."""

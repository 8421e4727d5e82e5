"""
Test package of moneta.

Only this root __init__.py is kept; subdirectories (unit/moneta/scale, unit/moneta/domain, ...)
work as namespace packages (PEP 420), so test module basenames must stay unique across the tree.
"""

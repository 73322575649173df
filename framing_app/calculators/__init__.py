"""
Frame-order pricing engine — deterministic calculation layer.

Pure Python math. No I/O, no database, no global configuration.
Given raw frame-order fields (dimensions in mm, prices already resolved
from the inventory catalog), produce material consumption and costs.
"""

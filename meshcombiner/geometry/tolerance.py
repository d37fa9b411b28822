from __future__ import annotations

# Positional epsilon for near-zero distance/length checks.
EPS_POS = 1e-12

# Area epsilon for degenerate triangle checks.
EPS_AREA = 1e-12

# Vertex weld/snap epsilon for collision mesh cleaning.
EPS_WELD = 1e-6

# Extent below which an axis is considered flat for UV projection.
EPS_EXTENT = 1e-9

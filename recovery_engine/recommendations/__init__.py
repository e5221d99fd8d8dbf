"""
Recommendation engine: converts a household plus the material catalog into a
rebuild-size suggestion or a repair bill of materials.

Modules
-------
quantity  : QuantityPolicy protocol + EvenShareQuantity (default) +
            BoundedRandomQuantity (non-deterministic, fixtures only).
generator : MaterialCatalog + build_catalog() + recommend() +
            recommend_all() - pure functions, no DB or I/O.
"""

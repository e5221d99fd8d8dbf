"""
Data import for the reference store.

Modules
-------
seed_loader : parse_seed() validates a JSON seed file into domain models;
              load_seed() upserts them into SQLite.
"""

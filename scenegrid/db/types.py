from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB

# Scene payload columns (grid config, tiles, choices, effects) and log snapshots.
JSONType = JSON().with_variant(JSONB(), "postgresql")

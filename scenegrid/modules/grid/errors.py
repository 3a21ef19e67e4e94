class MalformedTileId(ValueError):
    def __init__(self, tile_id: object, reason: str = "tile id must be letters followed by a positive row number"):
        self.tile_id = tile_id
        self.reason = reason
        super().__init__(f"malformed tile id {tile_id!r}: {reason}")

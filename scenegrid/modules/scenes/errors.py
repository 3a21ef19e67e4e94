from __future__ import annotations


class SceneValidationViolation(ValueError):
    def __init__(self, scene_key: str, violations: list[str]):
        self.scene_key = scene_key
        self.violations = list(violations)
        preview = "; ".join(self.violations[:5])
        super().__init__(f"scene {scene_key} has {len(self.violations)} violation(s): {preview}")


class UnknownScene(LookupError):
    def __init__(self, scene_id: int, subscene_id: int):
        self.scene_id = scene_id
        self.subscene_id = subscene_id
        super().__init__(f"unknown scene {scene_id}.{subscene_id}")

"""Output formats. Each module registers itself with formats.base.registry on import."""

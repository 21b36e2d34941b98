__all__ = ["DSSP", "tinker"]

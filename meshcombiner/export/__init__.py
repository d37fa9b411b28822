from meshcombiner.export.obj_export import obj_text, write_outcomes

__all__ = ["obj_text", "write_outcomes"]

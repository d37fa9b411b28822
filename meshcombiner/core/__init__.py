from meshcombiner.core.transform import Matrix4, compose_trs, transform_normals, transform_points, translation

__all__ = ["Matrix4", "compose_trs", "transform_normals", "transform_points", "translation"]

from meshcombiner.io.mesh_import import MeshImportError, import_mesh_file, mesh_from_dict, parse_obj_text

__all__ = ["MeshImportError", "import_mesh_file", "mesh_from_dict", "parse_obj_text"]

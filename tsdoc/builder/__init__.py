"""Point → document expansion."""

from tsdoc.builder.documents import BuiltDocument, build_documents, escape_field_name

__all__ = ["BuiltDocument", "build_documents", "escape_field_name"]

from .field_mapper import declared_attributes, copy_fields, Mapper, BlindMapper, FieldMapping

__all__ = ["declared_attributes", "copy_fields", "Mapper", "BlindMapper", "FieldMapping"]

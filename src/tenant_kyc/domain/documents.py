"""Catalog of identity document types accepted by the capture flow."""

from dataclasses import dataclass

from tenant_kyc.domain.errors import UnknownDocumentTypeError


@dataclass(frozen=True)
class DocumentTypeDescriptor:
    """Static description of an identity document type."""

    id: str
    label: str
    requires_verso: bool


DOCUMENT_TYPES: tuple[DocumentTypeDescriptor, ...] = (
    DocumentTypeDescriptor(id="id_card", label="National ID card", requires_verso=True),
    DocumentTypeDescriptor(id="passport", label="Passport", requires_verso=False),
    DocumentTypeDescriptor(
        id="residence_permit", label="Residence permit", requires_verso=True
    ),
    DocumentTypeDescriptor(
        id="driving_license", label="Driving licence", requires_verso=True
    ),
)

_BY_ID = {descriptor.id: descriptor for descriptor in DOCUMENT_TYPES}


def get_document_type(document_type_id: str) -> DocumentTypeDescriptor:
    """Return the catalog entry for a document type id."""
    descriptor = _BY_ID.get(document_type_id)
    if descriptor is None:
        raise UnknownDocumentTypeError(document_type_id)
    return descriptor

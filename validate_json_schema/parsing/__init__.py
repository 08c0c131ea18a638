"""Document parsing: format detection and YAML / JSON loading.

Everything here produces plain document values (dict / list / scalars) so
that validation does not depend on the input format.
"""

from .format_detector import DocumentFormat, detect_format, format_from_extension
from .document_parser import DocumentParser, ParsedDocument, document_parser

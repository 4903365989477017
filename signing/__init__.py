"""Start embedded DocuSign signing sessions from a template."""

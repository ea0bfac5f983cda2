"""Bank Statement Verifier.

Renders PDF bank statements to page images, delegates classification,
field extraction and fraud assessment to an inference service, and
reconciles the extracted ledger locally.
"""

__version__ = "1.0.0"
__author__ = "Statement Verification Team"

"""
Payment proof review.

Proof assessments are derived on every read and never stored. A payment
needs review when it has no proof at all or when any proof is missing its
storage path, its public URL or an image MIME type.
"""

PROOF_STATUS_OK = 'ok'
PROOF_STATUS_NEEDS_REVIEW = 'needs_review'

NO_PROOF_ISSUE = 'No payment proof uploaded'

DEFAULT_PAYMENT_TYPE = 'deposit'


def _blank(value):
    return value is None or not str(value).strip()


def assess_proof(proof):
    """
    List the defects of a single proof.

    Args:
        proof: Proof row with storage_path, public_url and mime_type

    Returns:
        dict: ``issues`` (list of str) and ``suspicious`` (bool)
    """
    issues = []

    if _blank(proof.get('storage_path')):
        issues.append('Missing storage path')

    if _blank(proof.get('public_url')):
        issues.append('Missing public URL')

    mime_type = proof.get('mime_type')
    if _blank(mime_type):
        issues.append('Unknown MIME type')
    elif not str(mime_type).strip().lower().startswith('image/'):
        issues.append(f'Unexpected MIME type: {mime_type}')

    return {'issues': issues, 'suspicious': bool(issues)}


def normalize_proof(proof):
    """Return a copy of ``proof`` with its assessment and a default payment type."""
    assessment = assess_proof(proof)
    normalized = dict(proof)
    normalized['payment_type'] = proof.get('payment_type') or DEFAULT_PAYMENT_TYPE
    normalized['issues'] = assessment['issues']
    normalized['suspicious'] = assessment['suspicious']
    return normalized


def normalize_payment(record, proofs):
    """
    Combine a payment with its proofs and derive the review state.

    Args:
        record: Payment row
        proofs: Proof rows for the payment's booking

    Returns:
        dict: The payment with ``proofs``, ``proof_issues``, ``has_proof``
        and ``proof_status`` added
    """
    normalized_proofs = [normalize_proof(proof) for proof in proofs or ()]

    proof_issues = []
    for proof in normalized_proofs:
        proof_issues.extend(proof['issues'])
    if not normalized_proofs:
        proof_issues.append(NO_PROOF_ISSUE)

    any_suspicious = any(proof['suspicious'] for proof in normalized_proofs)

    payment = dict(record)
    payment['proofs'] = normalized_proofs
    payment['has_proof'] = bool(normalized_proofs)
    payment['proof_issues'] = proof_issues
    payment['proof_status'] = (
        PROOF_STATUS_NEEDS_REVIEW if proof_issues or any_suspicious else PROOF_STATUS_OK
    )
    return payment


def review_warnings(payment):
    """Deduplicated proof issues of a payment that needs review, in first-seen order."""
    if payment.get('proof_status') != PROOF_STATUS_NEEDS_REVIEW:
        return []
    return list(dict.fromkeys(payment.get('proof_issues', [])))

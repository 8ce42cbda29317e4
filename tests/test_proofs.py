"""
Tests for payment proof review.

The review is a pure function of the proof set, so these tests need no
database.
"""

from core.proofs import (
    NO_PROOF_ISSUE,
    PROOF_STATUS_NEEDS_REVIEW,
    PROOF_STATUS_OK,
    assess_proof,
    normalize_payment,
    normalize_proof,
    review_warnings,
)

GOOD_PROOF = {
    'id': 'p1',
    'storage_path': 'payment-proofs/b1/receipt.png',
    'public_url': 'https://storage.example.com/payment-proofs/b1/receipt.png',
    'mime_type': 'image/png',
    'payment_type': 'full',
}


def test_well_formed_proof_has_no_issues():
    assert assess_proof(GOOD_PROOF) == {'issues': [], 'suspicious': False}


def test_missing_fields_are_reported_in_order():
    result = assess_proof({'storage_path': '', 'public_url': None, 'mime_type': '  '})
    assert result['issues'] == ['Missing storage path', 'Missing public URL', 'Unknown MIME type']
    assert result['suspicious'] is True


def test_non_image_mime_type_is_unexpected():
    result = assess_proof(dict(GOOD_PROOF, mime_type='application/pdf'))
    assert result['issues'] == ['Unexpected MIME type: application/pdf']


def test_mime_type_check_is_case_insensitive():
    assert assess_proof(dict(GOOD_PROOF, mime_type='IMAGE/JPEG'))['issues'] == []


def test_normalize_proof_defaults_payment_type():
    proof = normalize_proof(dict(GOOD_PROOF, payment_type=None))
    assert proof['payment_type'] == 'deposit'
    assert proof['suspicious'] is False


def test_payment_without_proofs_needs_review():
    payment = normalize_payment({'id': 'pay1', 'payment_status': 'pending'}, [])

    assert payment['proof_status'] == PROOF_STATUS_NEEDS_REVIEW
    assert payment['proof_issues'] == [NO_PROOF_ISSUE]
    assert payment['has_proof'] is False
    assert payment['proofs'] == []


def test_payment_with_good_proof_is_ok():
    payment = normalize_payment({'id': 'pay1'}, [GOOD_PROOF])
    assert payment['proof_status'] == PROOF_STATUS_OK
    assert payment['proof_issues'] == []
    assert payment['has_proof'] is True


def test_one_bad_proof_flags_the_payment():
    bad = dict(GOOD_PROOF, id='p2', mime_type='text/html')
    payment = normalize_payment({'id': 'pay1'}, [GOOD_PROOF, bad])

    assert payment['proof_status'] == PROOF_STATUS_NEEDS_REVIEW
    assert payment['proof_issues'] == ['Unexpected MIME type: text/html']
    assert [proof['suspicious'] for proof in payment['proofs']] == [False, True]


def test_normalize_payment_does_not_mutate_input():
    record = {'id': 'pay1'}
    normalize_payment(record, [GOOD_PROOF])
    assert record == {'id': 'pay1'}


def test_review_state_follows_the_proof_set():
    proofs = []
    assert normalize_payment({}, proofs)['proof_status'] == PROOF_STATUS_NEEDS_REVIEW

    proofs.append(GOOD_PROOF)
    assert normalize_payment({}, proofs)['proof_status'] == PROOF_STATUS_OK

    proofs.pop()
    payment = normalize_payment({}, proofs)
    assert payment['proof_status'] == PROOF_STATUS_NEEDS_REVIEW
    assert payment['proof_issues'] == [NO_PROOF_ISSUE]


def test_review_warnings_are_deduplicated():
    bad = dict(GOOD_PROOF, mime_type=None)
    payment = normalize_payment({}, [bad, dict(bad, id='p3')])

    assert payment['proof_issues'] == ['Unknown MIME type', 'Unknown MIME type']
    assert review_warnings(payment) == ['Unknown MIME type']


def test_no_warnings_when_payment_is_ok():
    assert review_warnings(normalize_payment({}, [GOOD_PROOF])) == []

"""
agromart.core.otp — OTP entry and verification flow.

Modules:
    entry.py      CodeEntryModel — slot buffer + focus index (pure state)
    timer.py      CountdownTimer — per-screen asyncio countdown
    resend.py     ResendController — fresh code, buffer/timer reset
    submitter.py  VerificationSubmitter — validate, verify, interpret
    screen.py     OtpScreen — state machine composing the above
    models.py     outcomes, submission state, screen view

Collaborator interfaces (verification, dispatch, navigation) live in
``agromart.auth.base``.
"""

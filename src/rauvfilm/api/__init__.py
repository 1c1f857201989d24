"""HTTP API for reservations, referrals and reviews."""

"""Token-mediated unsubscribe service."""

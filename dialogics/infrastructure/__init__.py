"""Infrastructure layer: remote store client, local cache, persistence gateway."""

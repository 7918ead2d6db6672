"""swarmhook: registry push webhooks to Docker Swarm service updates."""

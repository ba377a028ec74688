"""IBM Cloud authentication and Container Registry API clients."""

"""Random-action simulation of a staking pool."""

"""Build and install libguestfs from source with a prebuilt appliance."""

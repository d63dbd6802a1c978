"""Built-in CLI sub-commands for ims-oauth."""

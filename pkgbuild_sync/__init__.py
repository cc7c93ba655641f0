"""Keep AUR PKGBUILDs in step with upstream release tags."""

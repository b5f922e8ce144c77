"""
mpc_beacon.tests
----------------
Test package initializer for the beacon contribution.

Notes:
- Chain tests run with n = 10 (1024 hash steps) so the whole suite stays fast.
- Parameters files are tiny reference BN254 states built in ``tmp_path``; they
  have no relation to any real ceremony.
"""

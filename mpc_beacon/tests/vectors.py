"""Known-answer values shared by the tests (computed with stock sha256/openssl tools)."""

ZERO_BEACON = "00" * 32

# All-zero beacon, n = 10: checkpoint k is SHA-256 applied k times to 32 zero bytes.
ZERO_CHECKPOINT_1 = "66687aadf862bd776c8fc18b8e9f8e20089714856ee233b3902a591d0d5f2925"
ZERO_CHECKPOINT_2 = "2b32db6c2c0a6235fb1397e8225ea85e0f0e6e8c7b126d0016ccbde0e667151e"
ZERO_CHECKPOINT_1023 = "012d45b92f25ade10188a9722715008fa0197b7f574503e289a144a1efbdf8e2"
ZERO_FINAL_N10 = "73b858b1c953da71f6c3949a9042ce57ee7c79c0e564e2c7632e9ce99d73f968"

ZERO_SEED_N10 = (
    0x73B858B1, 0xC953DA71, 0xF6C3949A, 0x9042CE57,
    0xEE7C79C0, 0xE564E2C7, 0x632E9CE9, 0x9D73F968,
)

# ChaCha20 keystream (counter 0, zero nonce) keyed by ZERO_SEED_N10, words little-endian.
ZERO_KEYSTREAM_N10 = bytes.fromhex(
    "b135f5f524ee88875d399326050bc64e77ef3e2d0f5dc5b877c9ad8660baba1c"
    "a6425722a9151a4430bbc2fc1440e313b237d909c19cc9b8eb36ce85326ef330"
)

# RFC 7539 A.1 test vector #1: all-zero key, counter 0, zero nonce.
RFC7539_ZERO_KEY_BLOCK = bytes.fromhex(
    "76b8e0ada0f13d90405d6ae55386bd28bdd219b8a08ded1aa836efcc8b770dc7"
    "da41597c5157488d7724e03fb8d84a376a43b8f41518a11cc387b669b2ee6586"
)

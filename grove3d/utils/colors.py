"""Hex colors and palettes for trunks, branches and foliage."""

WHITE_L = 0xF0F0F0
WHITE_D = 0xE0E0E0
GREY_L = 0x888888
GREY_D = 0x444444
GREEN_D = 0x228822
PINK_L = 0xFFC0CB
RED_L = 0xFF6B6B
RED_D = 0xE53E3E
PURPLE_L = 0x9B59B6
PURPLE_D = 0x8E44AD
YELLOW_L = 0xFFD700
YELLOW_D = 0xF1C40F

# bark tones for simple trunks
TRUNC = (0xF0F0F0, 0xE0E0E0, 0x888888, 0x444444)

PINKS = (0xFFC0CB, 0xFFB6C1, 0xFF69B4)
YELLOWS = (0xFFD700, 0xFFDF00, 0xFFEF00)
PURPLES = (0x9B59B6, 0x8E44AD, 0x7D3C98)
GREENS = (0x2ECC71, 0x27AE60, 0x229954)

# foliage palettes a simple tree can draw from
FOLIAGE_PALETTES = (PINKS, YELLOWS, GREENS, PURPLES)

# sub-blobs of complex foliage
LEAVES = (0x2ECC71, 0x27AE60, 0x1E8449, 0x196F3D)

# box trees of the lightweight forest
BOX_LEAVES = (0x91E56E, 0xA2FF7A, 0x71B356, 0xB2FFB2, 0x6EDB91, 0xC2FFB2, 0xA2E5A2)
STEMS = (0x7D5A4F, 0xA67C52, 0x8B5A2B, 0xB97A56)

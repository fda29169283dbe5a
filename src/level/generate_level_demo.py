import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from src.level.level_generator import LevelGeneratorSystem

COLUMN_WIDTH = 100  # world units per printed column
STRIP_HEIGHT = 8


def print_level(level_data, ground_height=320, width=100):
    """Prints a textual side view of a generated level."""
    counts = level_data.entity_counts()
    print(f"Level {level_data.number} ({level_data.difficulty}), length {level_data.length:.0f}")
    for name, count in counts.items():
        print(f"  {name}: {count}")

    print("Sections:")
    for section in level_data.sections:
        print(f"  {section.type:<9} {section.start:>7.0f} -> {section.end:>7.0f}")

    columns = min(width, int(level_data.length // COLUMN_WIDTH) + 1)
    ground = ground_height
    rows = [[" "] * columns for _ in range(STRIP_HEIGHT)]

    def plot(x, y, char):
        col = int(x // COLUMN_WIDTH)
        # one printed row per 40 units above ground
        row = STRIP_HEIGHT - 1 - int((ground - y) // 40)
        if 0 <= col < columns and 0 <= row < STRIP_HEIGHT:
            rows[row][col] = char

    for platform in level_data.platforms:
        plot(platform.x, platform.y, "=" if platform.type == "static" else "~")
    for ring in level_data.rings:
        plot(ring.x, ring.y, "o" if ring.type == "normal" else "*")
    for pad in level_data.jump_pads:
        plot(pad.x, pad.y, "^")
    for enemy in level_data.enemies:
        plot(enemy.x, enemy.y, "E")
    for checkpoint in level_data.checkpoints:
        plot(checkpoint.x, checkpoint.y, "G" if checkpoint.is_goal else "C")

    print("-" * (columns + 2))
    for row in rows:
        print("|" + "".join(row) + "|")
    print("#" * (columns + 2))


if __name__ == "__main__":
    print("--- Generating Procedural Level Demo ---")

    level_number = int(sys.argv[1]) if len(sys.argv) > 1 else 1
    generator = LevelGeneratorSystem(world_seed=12345)
    result = generator.generate_level(level_number, length=6000)

    print_level(result.level_data, generator.rules.constants.ground_height)

    summary = result.validation.summary
    print(f"Errors: {summary.total_errors}  Warnings: {summary.total_warnings}  "
          f"Repair passes: {result.metadata.repair_passes}")
    print(summary.recommendation)

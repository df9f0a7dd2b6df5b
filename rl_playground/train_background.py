#!/usr/bin/env python3
"""
Headless training for the RL playground with optional checkpoint saving.
Runs episodes back to back without the settle delay and prints the learned path.
"""

import argparse
import sys
from datetime import datetime
from typing import List, Optional

from .app.engine import LearningEngine
from .domain.types import EpisodeResult, RLConfig
from .utils.checkpoint_manager import CheckpointManager
from .utils.rng import SeededRNG


def create_progress_callback(log_every: int, engine: LearningEngine):
    """Create a callback that prints a progress line every ``log_every`` episodes."""
    recent: List[EpisodeResult] = []

    def report(episode: EpisodeResult):
        recent.append(episode)
        if log_every <= 0 or len(recent) < log_every:
            return
        success = sum(1 for ep in recent if ep.reached_gem)
        print(f"Episode {engine.statistics().episode_count}: "
              f"Success rate: {success / len(recent):.1%}, Epsilon: {engine.epsilon:.3f}")
        recent.clear()

    return report


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Headless Q-Learning on the 5x5 gem grid")
    parser.add_argument("--episodes", type=int, default=500, help="Number of episodes to train")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the exploration RNG")
    parser.add_argument("--max-steps", type=int, default=1000, help="Step cap per episode")
    parser.add_argument("--log-every", type=int, default=50, help="Episodes between progress lines (0 = quiet)")
    parser.add_argument("--checkpoint-dir", type=str, default="training_checkpoints", help="Checkpoint directory")
    parser.add_argument("--save-checkpoint", action="store_true", help="Save a checkpoint after training")
    parser.add_argument("--load-checkpoint", type=str, help="Checkpoint ID to continue from")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    print("🧠 RL Playground Headless Training")
    print("=" * 50)

    config = RLConfig()
    engine = LearningEngine(config, SeededRNG(args.seed))
    manager = None
    if args.save_checkpoint or args.load_checkpoint:
        manager = CheckpointManager(args.checkpoint_dir)

    if args.load_checkpoint:
        print(f"📂 Loading checkpoint: {args.load_checkpoint}")
        checkpoint = manager.load_checkpoint(args.load_checkpoint)
        if checkpoint and manager.apply_checkpoint(checkpoint, engine):
            print(f"✅ Checkpoint loaded: Episode {checkpoint.episode_count}, Epsilon: {checkpoint.epsilon:.3f}")
        else:
            print("❌ Failed to load checkpoint. Starting fresh.")

    print(f"\n⚙️  Training Configuration:")
    print(f"   Episodes: {args.episodes}")
    print(f"   Learning rate: {config.learning_rate}")
    print(f"   Discount factor: {config.discount_factor}")
    print(f"   Epsilon: {engine.epsilon} → {config.epsilon_min}")
    print(f"   Starting from episode: {engine.statistics().episode_count}")

    print(f"\n🚀 Starting training...")
    try:
        result = engine.run_episodes(
            args.episodes,
            max_steps_per_episode=args.max_steps,
            episode_callback=create_progress_callback(args.log_every, engine)
        )
    except KeyboardInterrupt:
        print(f"\n⏹️  Training interrupted by user")
        return 1

    stats = engine.statistics()
    print(f"\n🎉 Training completed!")
    print(f"   Total episodes: {result.total_episodes}")
    print(f"   Reached the gem: {result.successful_episodes}")
    print(f"   Success rate: {result.success_rate:.1%}")
    print(f"   Average reward: {result.average_reward:.2f}")
    if stats.has_best_episode:
        print(f"   Best episode reward: {stats.best_episode_reward:.1f}")
    print(f"   Final epsilon: {result.final_epsilon:.3f}")

    route = " → ".join(f"[{row},{col}]" for row, col in result.optimal_path)
    if result.reached_gem:
        print(f"\n✅ Optimal path ({len(result.optimal_path) - 1} steps): {route}")
    else:
        print(f"\n❌ Greedy policy does not reach the gem yet: {route or '(empty)'}")

    if args.save_checkpoint:
        checkpoint_id = f"playground_ep{stats.episode_count}_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
        try:
            path = manager.save_checkpoint(checkpoint_id, engine)
            print(f"✅ Checkpoint saved: {checkpoint_id} -> {path}")
        except OSError as e:
            print(f"❌ Failed to save checkpoint: {e}")
            return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())

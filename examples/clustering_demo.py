"""
Demonstration of the Adaptive Resonance Core

Walks through every category geometry and ARTMAP:
1. Ellipsoid clustering of two blobs
2. Gaussian categories with full covariance
3. Multi-channel fusion with per-channel vigilance
4. Salience-weighted categories that ignore a noisy feature
5. ARTMAP match tracking on an XOR-like labelling
"""

import logging

import numpy as np

from adaptive_resonance import (
    ARTMAP,
    ARTModule,
    EllipsoidParameters,
    FusionParameters,
    GaussianParameters,
    OptimizationPolicy,
    SalienceParameters,
    complement_code,
    join_channels,
)


def print_section(title):
    """Print a formatted section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


def blobs(rng, centers, spread, per_center):
    points = [rng.normal(c, spread, size=(per_center, len(c))) for c in centers]
    return np.clip(np.vstack(points), 0.0, 1.0)


def demonstrate_ellipsoid(rng):
    print_section("Ellipsoid categories")

    module = ARTModule(EllipsoidParameters(vigilance=0.7, learning_rate=0.5, r_hat=1.0))
    data = blobs(rng, [(0.2, 0.2), (0.8, 0.8)], 0.03, 25)
    rng.shuffle(data)
    results = module.learn_batch(data)

    created = sum(r.created for r in results)
    print(f"  Patterns learned: {len(results)}")
    print(f"  Categories created: {created}")
    for category in module.get_categories():
        print(f"  #{category.index}: centroid={np.round(category.centroid, 3)} "
              f"radius={category.radius:.4f} samples={category.sample_count}")

    report = module.optimize_network(OptimizationPolicy(min_usage_ratio=0.2, seed=7))
    print(f"  Pruned after optimization: {list(report.pruned_indices)}")
    print(f"  Snapshot: {module.get_performance_snapshot()}")


def demonstrate_gaussian(rng):
    print_section("Gaussian categories (full covariance)")

    module = ARTModule(GaussianParameters(vigilance=0.05, sigma_init=0.1, covariance="full"))
    data = blobs(rng, [(0.3, 0.6), (0.7, 0.2)], 0.04, 30)
    module.learn_batch(data)

    for category in module.get_categories():
        print(f"  #{category.index}: mean={np.round(category.mean, 3)} n={category.sample_count}")
        print(f"      covariance diag={np.round(category.variances, 5)}")


def demonstrate_fusion():
    print_section("Fusion categories (two channels)")

    params = FusionParameters(
        vigilance=0.6,
        channel_dims=(4, 4),
        channel_weights=(0.7, 0.3),
        channel_vigilance=(0.8, 0.5),
        adapt_channel_weights=True,
    )
    module = ARTModule(params)
    visual = complement_code([0.9, 0.1])
    audio = complement_code([0.4, 0.6])
    result = module.learn(join_channels([visual, audio]))
    print(f"  First pattern: {result}")

    shifted = join_channels([complement_code([0.85, 0.15]), complement_code([0.2, 0.8])])
    print(f"  Shifted audio: {module.learn(shifted)}")
    for category in module.get_categories():
        print(f"  #{category.index}: channel weights={np.round(category.channel_weights, 3)}")


def demonstrate_salience(rng):
    print_section("Salience-weighted categories")

    module = ARTModule(SalienceParameters(vigilance=0.6, learning_rate=0.2, salience_rate=0.3))
    for _ in range(40):
        stable = [0.8, 0.2]
        noisy = [rng.uniform(0.0, 1.0)]
        module.learn(stable + noisy)

    category = module.get_category(0)
    print(f"  Categories: {module.get_category_count()}")
    print(f"  Salience per feature: {np.round(category.salience, 3)}")


def demonstrate_artmap():
    print_section("ARTMAP match tracking")

    inputs = [complement_code(p) for p in ([0.1, 0.1], [0.1, 0.9], [0.9, 0.1], [0.9, 0.9])]
    labels = ["even", "odd", "odd", "even"]

    mapper = ARTMAP(ARTModule(EllipsoidParameters(vigilance=0.0, r_hat=4.0)))
    for epoch in range(2):
        for pattern, label in zip(inputs, labels):
            result = mapper.learn(pattern, label)
            print(f"  epoch {epoch} {label:>4}: state={result.state.name} "
                  f"a={result.a_index} attempts={result.attempts} "
                  f"vigilance={result.final_vigilance:.4f}")

    for pattern, label in zip(inputs, labels):
        prediction = mapper.predict(pattern)
        print(f"  predict -> {prediction.b_label} (expected {label})")
    print(f"  Map field: {mapper.map_field}")


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    rng = np.random.default_rng(42)

    demonstrate_ellipsoid(rng)
    demonstrate_gaussian(rng)
    demonstrate_fusion()
    demonstrate_salience(rng)
    demonstrate_artmap()

    print("\n✓ Demonstration complete")


if __name__ == "__main__":
    main()

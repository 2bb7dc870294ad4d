import numpy as np
from time import perf_counter
from sklearn.datasets import load_diabetes
from wlearn import Feature, FeatureType, MemoryDataset, DatasetGenerator, split_folds
from wlearn.generator import ScalarIdentity, SLog1p, PercentileHistogramMedians
from wlearn.gboost import ProductWeakLearner, StumpWeakLearner

df = load_diabetes(as_frame=True).frame
feats = [c for c in df.columns if c != "target"]

ds = MemoryDataset()
ds.resize(len(df), [Feature(c).scalar(FeatureType.float64) for c in df.columns], target=len(df.columns) - 1)
for s, row in enumerate(df.itertuples(index=False)):
    for f, value in enumerate(row):
        ds.set(s, f, value)

train, valid, _ = split_folds(ds.samples(), random_state=42)
gen = (
    DatasetGenerator(ds)
    .add(ScalarIdentity)
    .add(SLog1p)
    .add(PercentileHistogramMedians, bins=8)
    .fit(train.samples)
)
print(f"{gen.features()} generated features from {len(feats)} inputs")

# least-squares boosting: the gradient of 0.5 * (f - y)^2 is f - y
y_train, y_valid = gen.targets(train.samples), gen.targets(valid.samples)
f_train = np.full_like(y_train, y_train.mean())
f_valid = np.full_like(y_valid, y_train.mean())
shrinkage = 0.3

t0 = perf_counter()
for rnd in range(30):
    learner = StumpWeakLearner() if rnd % 2 else ProductWeakLearner(degree=2, prototypes=["lin1", "log1"])
    score = learner.fit(gen, train, f_train - y_train)
    if not np.isfinite(score):
        break
    learner.scale([shrinkage])
    f_train += learner.predict(gen, train)
    f_valid += learner.predict(gen, valid)
    if rnd < 4:
        print(f"round {rnd}: {learner.describe(gen)}")
print(f"fit: {perf_counter()-t0:.3f} s")

print(f"train MSE: {np.mean((f_train - y_train) ** 2):.1f}")
print(f"valid MSE: {np.mean((f_valid - y_valid) ** 2):.1f}")

from setuptools import setup, find_packages

setup(
    name="bpe_basics",
    version="0.1.0",
    description="Incremental byte-level BPE training over a raw byte corpus",
    packages=find_packages(exclude=["*.tests", "*.tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "numpy",
    ],
    extras_require={
        "test": [
            "pytest",
            "psutil",
        ],
    },
    entry_points={
        "console_scripts": [
            "bpe-train=bpe_basics.BPE_Tokenizer.train_bpe:main",
        ],
    },
    zip_safe=False,
)

from distributed_lzo_indexer.cli import main


if __name__ == "__main__":
    raise SystemExit(main())

from crabby_bird.game import main


if __name__ == "__main__":
    main()

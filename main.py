from fourier_explorer.main import main

if __name__ == "__main__":
    main()
